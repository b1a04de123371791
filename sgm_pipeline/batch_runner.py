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
import os
import time

import numpy as np

from sgm_pipeline.errors import IncompatibleImagesError
from sgm_pipeline.frame_source import load_first_pair
from sgm_pipeline.device_buffer import device_buffer
from sgm_pipeline.device_buffer import disparity_bytes
from sgm_pipeline.stereo_sgm import stereo_sgm
from sgm_pipeline.stereo_sgm import create_sgm_parameters
from sgm_pipeline.disparity_encoder import encode_disparity
from sgm_pipeline.disparity_encoder import disparity_file_path
from sgm_pipeline.disparity_encoder import write_disparity

logger = logging.getLogger(__name__)

class batch_result():
    def __init__(self):
        self.processed = list()
        self.written = list()
        self.failed = list()
        # True when the loop stopped at an unreadable frame
        self.end_of_sequence = False

def check_geometry(pair, first):
    if (pair.width, pair.height, pair.depth) != (first.width, first.height, first.depth):
        raise IncompatibleImagesError('frame {} is {}x{} {} bit, expected {}x{} {} bit as frame {}.'.format(
            pair.index, pair.width, pair.height, pair.depth,
            first.width, first.height, first.depth, first.index))

def compute_fps(duration_us):
    if duration_us <= 0:
        return float('inf')
    return 1e6 / duration_us

def run_batch(param, matcher_factory=stereo_sgm, allocator=device_buffer, timer=time.perf_counter):
    param.validate()
    source, first = load_first_pair(param)

    sgm_param = create_sgm_parameters(first, param.disp_size)
    matcher = matcher_factory(sgm_param)
    invalid_disp = matcher.get_invalid_disparity()

    if param.total_number == 0:
        logger.warning('total_number is 0, no image pair will be processed.')
    # an empty output_path writes into the current directory
    if param.output_path:
        try:
            os.makedirs(param.output_path, exist_ok=True)
        except OSError as e:
            logger.error('cannot create output directory %s: %s', param.output_path, e)

    width, height = first.width, first.height
    src_bytes = first.nbytes
    dst_bytes = disparity_bytes(width, height, sgm_param.dst_depth)
    disparity = np.empty((height, width), dtype=np.int16)
    result = batch_result()

    with allocator(src_bytes) as d_left, allocator(src_bytes) as d_right, allocator(dst_bytes) as d_disparity:
        for frame_no in param.frame_range():
            pair = first if frame_no == first.index else source.load(frame_no)
            if pair is None:
                print('Finished processing all images or could not read image for frame {}.'.format(frame_no))
                result.end_of_sequence = True
                break
            check_geometry(pair, first)

            d_left.upload(pair.left)
            d_right.upload(pair.right)

            t1 = timer()
            matcher.execute(d_left, d_right, d_disparity)
            t2 = timer()
            fps = compute_fps(int((t2 - t1) * 1e6))

            d_disparity.download(disparity)
            encoded = encode_disparity(disparity, invalid_disp)

            fpfn = disparity_file_path(param.output_path, frame_no)
            if write_disparity(fpfn, encoded):
                print('Frame {:4d}: Saved to {} ({:.2f} FPS)'.format(frame_no, fpfn, fps))
                result.written.append(fpfn)
            else:
                logger.error('Error saving frame %d to %s.', frame_no, fpfn)
                result.failed.append(frame_no)
            result.processed.append(frame_no)

    logger.info('processed %d frame(s), %d written, %d failed',
        len(result.processed), len(result.written), len(result.failed))
    return result
