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
import time

from sgm_pipeline.device_buffer import device_buffer
from sgm_pipeline.device_buffer import disparity_bytes
from sgm_pipeline.stereo_sgm import stereo_sgm
from sgm_pipeline.frame_source import load_first_pair
from sgm_pipeline.stereo_sgm import create_sgm_parameters

logger = logging.getLogger(__name__)

WARMUP_RUNS = 20
MEASUREMENT_RUNS = 50

class benchmark_result():
    def __init__(self):
        self.durations_ms = list()

    @property
    def average_ms(self):
        return sum(self.durations_ms) / len(self.durations_ms)

def run_benchmark(param, matcher_factory=stereo_sgm, allocator=device_buffer, timer=time.perf_counter):
    # output_path and total_number are not used here
    param.validate()
    _, pair = load_first_pair(param)

    sgm_param = create_sgm_parameters(pair, param.disp_size)
    matcher = matcher_factory(sgm_param)
    logger.debug('benchmarking frame %d (%dx%d, %d bit)', pair.index, pair.width, pair.height, pair.depth)

    src_bytes = pair.nbytes
    dst_bytes = disparity_bytes(pair.width, pair.height, sgm_param.dst_depth)
    result = benchmark_result()

    with allocator(src_bytes) as d_left, allocator(src_bytes) as d_right, allocator(dst_bytes) as d_disparity:
        # the same device data is matched in every iteration
        d_left.upload(pair.left)
        d_right.upload(pair.right)

        print('Starting performance measurement...')
        print('Warm-up runs: {}'.format(WARMUP_RUNS))
        print('Measurement runs: {}'.format(MEASUREMENT_RUNS))

        for k in range(WARMUP_RUNS + MEASUREMENT_RUNS):
            t1 = timer()
            matcher.execute(d_left, d_right, d_disparity)
            t2 = timer()
            if k >= WARMUP_RUNS:
                result.durations_ms.append((t2 - t1) * 1e3)

    print('')
    print('-' * 50)
    print('Performance Results:')
    print('Average execution time over {} runs: {:.2f} ms.'.format(MEASUREMENT_RUNS, result.average_ms))
    print('-' * 50)

    return result
