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

import numpy as np
import cupy as cp
import cv2

from sgm_pipeline.device_buffer import device_buffer

def has_cuda_device():
    try:
        return cp.cuda.runtime.getDeviceCount() > 0
    except Exception:
        return False

def write_pair(dn, index, l, r, left_format='left_%04d.png', right_format='right_%04d.png'):
    assert cv2.imwrite('{}/{}'.format(dn, left_format % index), l)
    assert cv2.imwrite('{}/{}'.format(dn, right_format % index), r)

class host_buffer():
    """Host memory stand-in for device_buffer, used to test the runners without a GPU."""
    def __init__(self, nbytes):
        self.nbytes = nbytes
        self.data = np.zeros(nbytes, dtype=np.uint8)
        self.upload_count = 0
        self.download_count = 0
        self.is_freed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.is_freed = True

    @property
    def ptr(self):
        return self.data.ctypes.data

    def upload(self, host):
        src = device_buffer.host_bytes(host)
        assert src.size >= self.nbytes
        self.data[:] = src[:self.nbytes]
        self.upload_count += 1

    def download(self, host):
        dst = device_buffer.host_bytes(host)
        assert dst.size >= self.nbytes
        dst[:self.nbytes] = self.data
        self.download_count += 1

class host_allocator():
    def __init__(self):
        self.buffers = list()

    def __call__(self, nbytes):
        buf = host_buffer(nbytes)
        self.buffers.append(buf)
        return buf

class absolute_difference_matcher():
    """Takes |left - right| as disparity, invalid where it reaches disp_size."""
    invalid_disparity = -1

    def __init__(self, param):
        self.param = param
        self.execute_count = 0

    def get_invalid_disparity(self):
        return self.invalid_disparity

    def execute(self, d_left, d_right, d_disparity):
        dtype = np.uint8 if self.param.src_depth == 8 else np.uint16
        shape = self.param.height, self.param.width
        l = d_left.data.view(dtype).reshape(shape).astype(np.int32)
        r = d_right.data.view(dtype).reshape(shape).astype(np.int32)
        disparity = np.abs(l - r)
        disparity[disparity >= self.param.disp_size] = self.invalid_disparity
        d_disparity.data[:] = disparity.astype(np.int16).reshape(-1).view(np.uint8)
        self.execute_count += 1

class matcher_recorder():
    def __init__(self, matcher_class=absolute_difference_matcher):
        self.matcher_class = matcher_class
        self.matchers = list()

    def __call__(self, param):
        matcher = self.matcher_class(param)
        self.matchers.append(matcher)
        return matcher

def step_timer(durations):
    """Timer returning start and end stamps so that each call pair spans the next duration."""
    stamps = list()
    t = 0.0
    for d in durations:
        stamps.append(t)
        t += d
        stamps.append(t)
    return iter(stamps).__next__
