# This file is part of SGM-Pipeline.
# Copyright (c) 2023, The SGM-Pipeline Authors
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice, this
#    list of conditions and the following disclaimer.
# 2. Redistributions in binary form must reproduce the above copyright notice,
#    this list of conditions and the following disclaimer in the documentation
#    and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND
# ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED
# WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
# DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT OWNER OR CONTRIBUTORS BE LIABLE FOR
# ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES
# (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES;
# LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND
# ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT
# (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS
# SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.

import logging
import sys
from argparse import ArgumentParser

from sgm_pipeline.errors import PipelineError
from sgm_pipeline.pipeline_params import pipeline_params
from sgm_pipeline.stereo_sgm import SUPPORTED_DISP_SIZES
from sgm_pipeline.batch_runner import run_batch
from sgm_pipeline.benchmark_runner import run_benchmark

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

def create_parser(prog, is_benchmark=False):
    parser = ArgumentParser(prog=prog)
    parser.add_argument('left_image_format', help='format string for path to input left image', type=str)
    parser.add_argument('right_image_format', help='format string for path to input right image', type=str)
    if is_benchmark:
        parser.add_argument('--output_path', help='(unused) path to output directory', type=str, default='.')
        parser.add_argument('--start_number', help='index of the image pair to test', type=int, default=0)
        parser.add_argument('--total_number', help='(unused) number of image pairs to process', type=int, default=0)
    else:
        parser.add_argument('--output_path', help='path to output directory for disparity maps', type=str, default='.')
        parser.add_argument('--start_number', help='index to start reading', type=int, default=0)
        parser.add_argument('--total_number', help='number of image pairs to process', type=int, default=0)
    parser.add_argument('--disp_size', help='maximum possible disparity value', type=int, default=128,
                        choices=SUPPORTED_DISP_SIZES)
    parser.add_argument('--verbose', help='enable debug logging', action='store_true')
    return parser

def create_params(args):
    param = pipeline_params()
    param.left_image_format = args.left_image_format
    param.right_image_format = args.right_image_format
    param.output_path = args.output_path
    param.disp_size = args.disp_size
    param.start_number = args.start_number
    param.total_number = args.total_number
    return param

def setup_logging(verbose):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s')

def run(runner, prog, argv, is_benchmark):
    args = create_parser(prog, is_benchmark).parse_args(argv)
    setup_logging(args.verbose)
    try:
        runner(create_params(args))
    except PipelineError as e:
        logger.error('%s', e)
        return EXIT_FAILURE
    return EXIT_SUCCESS

def batch_main(argv=None):
    return run(run_batch, 'sgm-batch', argv, False)

def benchmark_main(argv=None):
    return run(run_benchmark, 'sgm-benchmark', argv, True)

if __name__ == '__main__':
    sys.exit(batch_main())
