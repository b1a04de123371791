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

import cupy as cp

from sgm_pipeline.errors import ConfigurationError

logger = logging.getLogger(__name__)

SUPPORTED_DISP_SIZES = 64, 128, 256
SUPPORTED_SRC_DEPTHS = 8, 16
# disparity is always produced at 16 bit precision
DST_DEPTH = 16
EXECUTE_INOUT_CUDA2CUDA = 'cuda2cuda'

class stereo_sgm_parameters:
    def __init__(self):
        self.width = 0
        self.height = 0
        self.disp_size = 128
        self.src_depth = 8
        self.dst_depth = DST_DEPTH
        # inputs and output stay in device memory
        self.inout_type = EXECUTE_INOUT_CUDA2CUDA

    def validate(self):
        if self.disp_size not in SUPPORTED_DISP_SIZES:
            raise ConfigurationError('disparity size must be 64, 128 or 256 (got {}).'.format(self.disp_size))
        if self.src_depth not in SUPPORTED_SRC_DEPTHS:
            raise ConfigurationError('source depth must be 8 or 16 (got {}).'.format(self.src_depth))
        if self.dst_depth != DST_DEPTH:
            raise ConfigurationError('destination depth must be {} (got {}).'.format(DST_DEPTH, self.dst_depth))
        if self.inout_type != EXECUTE_INOUT_CUDA2CUDA:
            raise ConfigurationError('unsupported execution mode: {}.'.format(self.inout_type))
        if (self.width <= 0) or (self.height <= 0):
            raise ConfigurationError('invalid image size {}x{}.'.format(self.width, self.height))

def create_sgm_parameters(pair, disp_size):
    sgm_param = stereo_sgm_parameters()
    sgm_param.width = pair.width
    sgm_param.height = pair.height
    sgm_param.disp_size = disp_size
    sgm_param.src_depth = pair.depth
    sgm_param.dst_depth = DST_DEPTH
    return sgm_param

def create_libsgm_engine(param):
    # libSGM python binding, built together with libSGM
    try:
        import pysgm
    except ImportError as e:
        raise RuntimeError('pysgm (libSGM python binding) is not available: {}'.format(e)) from e

    return pysgm.StereoSGM(param.width, param.height, param.disp_size, param.src_depth, param.dst_depth,
        pysgm.EXECUTE_INOUT.EXECUTE_INOUT_CUDA2CUDA)

class stereo_sgm():
    def __init__(self, param, engine_factory=None):
        param.validate()
        self.param = param
        if engine_factory is None:
            engine_factory = create_libsgm_engine
        self.engine = engine_factory(param)
        self.invalid_disparity = int(self.engine.get_invalid_disparity())
        logger.debug('stereo engine %dx%d, disp_size %d, src_depth %d, invalid disparity %d',
            param.width, param.height, param.disp_size, param.src_depth, self.invalid_disparity)

    def execute(self, d_left, d_right, d_disparity):
        """Run one matching pass and block until the device has finished."""
        self.engine.execute(d_left.ptr, d_right.ptr, d_disparity.ptr)
        cp.cuda.runtime.deviceSynchronize()

    def get_invalid_disparity(self):
        return self.invalid_disparity
