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

import numpy as np
import cv2

logger = logging.getLogger(__name__)

# keeps two decimal digits of sub-pixel disparity in an integer image
DISPARITY_PRECISION = 100
DISPARITY_FILE_FORMAT = 'disparity_{:04d}.png'

def encode_disparity(disparity, invalid_disparity, scale=DISPARITY_PRECISION):
    """Convert a signed disparity map into a storable 16 bit image.

    Valid samples are multiplied by ``scale`` and saturated to the uint16
    range, so values above 65535 are clipped and negative values become 0.
    Samples equal to ``invalid_disparity`` are written as 0, which is also
    the encoding of a valid zero disparity.
    """
    assert disparity.dtype == np.int16
    assert disparity.ndim == 2

    scaled = np.rint(disparity.astype(np.float64) * scale)
    info = np.iinfo(np.uint16)
    encoded = np.clip(scaled, info.min, info.max).astype(np.uint16)
    encoded[disparity == invalid_disparity] = 0

    return encoded

def disparity_file_name(index):
    return DISPARITY_FILE_FORMAT.format(index)

def disparity_file_path(output_path, index):
    return os.path.join(output_path, disparity_file_name(index))

def write_disparity(fpfn, encoded):
    try:
        ret = cv2.imwrite(fpfn, encoded)
    except cv2.error as e:
        logger.error('cv2.imwrite raised for %s: %s', fpfn, e)
        return False
    return bool(ret)
