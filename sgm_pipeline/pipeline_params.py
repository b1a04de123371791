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

from sgm_pipeline.errors import ConfigurationError
from sgm_pipeline.frame_source import format_path
from sgm_pipeline.stereo_sgm import SUPPORTED_DISP_SIZES

class pipeline_params:
    def __init__(self):
        self.left_image_format = None
        self.right_image_format = None
        self.output_path = '.'
        self.disp_size = 128
        self.start_number = 0
        self.total_number = 0

    def validate(self):
        # checked before any image is read or device memory is allocated
        if not self.left_image_format or not self.right_image_format:
            raise ConfigurationError('left and right image formats are required.')
        if self.disp_size not in SUPPORTED_DISP_SIZES:
            raise ConfigurationError('disparity size must be 64, 128 or 256 (got {}).'.format(self.disp_size))
        if self.start_number < 0:
            raise ConfigurationError('start_number must be non-negative (got {}).'.format(self.start_number))
        if self.total_number < 0:
            raise ConfigurationError('total_number must be non-negative (got {}).'.format(self.total_number))
        format_path(self.left_image_format, self.start_number)
        format_path(self.right_image_format, self.start_number)

    def frame_range(self):
        return range(self.start_number, self.start_number + self.total_number)
