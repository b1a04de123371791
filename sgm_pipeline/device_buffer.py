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

def source_image_bytes(width, height, depth):
    return depth * width * height // 8

def disparity_bytes(width, height, depth=16):
    return depth * width * height // 8

class device_buffer():
    """Fixed size block of device memory with explicit host transfers.

    The block is allocated once and reused; upload and download always move
    exactly ``nbytes`` bytes.
    """
    def __init__(self, nbytes):
        assert nbytes > 0
        self.nbytes = nbytes
        self.data = cp.empty(nbytes, dtype=cp.uint8)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.free()

    @property
    def ptr(self):
        return self.data.data.ptr

    @staticmethod
    def host_bytes(arr):
        if not arr.flags.c_contiguous:
            raise ValueError('host buffer must be C-contiguous.')
        return arr.reshape(-1).view(np.uint8)

    def upload(self, host):
        src = self.host_bytes(host)
        if src.size < self.nbytes:
            raise ValueError('host buffer holds {} bytes, {} required.'.format(src.size, self.nbytes))
        self.data.set(src[:self.nbytes])

    def download(self, host):
        dst = self.host_bytes(host)
        if dst.size < self.nbytes:
            raise ValueError('host buffer holds {} bytes, {} required.'.format(dst.size, self.nbytes))
        if not dst.flags.writeable:
            raise ValueError('host buffer is read-only.')
        self.data.get(out=dst[:self.nbytes])

    def free(self):
        self.data = None
