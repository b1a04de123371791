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

import numpy as np
import cv2

from sgm_pipeline.errors import ConfigurationError
from sgm_pipeline.errors import FrameLoadError
from sgm_pipeline.errors import IncompatibleImagesError
from sgm_pipeline.device_buffer import source_image_bytes

logger = logging.getLogger(__name__)

# OpenCV depth notation used in diagnostics
_DEPTH_NAMES = {
    np.dtype(np.uint8): '8U',
    np.dtype(np.int8): '8S',
    np.dtype(np.uint16): '16U',
    np.dtype(np.int16): '16S',
    np.dtype(np.int32): '32S',
    np.dtype(np.float32): '32F',
    np.dtype(np.float64): '64F',
}

def format_path(template, index):
    """Expand a printf-style path template such as ``left_%06d.png``."""
    try:
        return template % index
    except (TypeError, ValueError) as e:
        raise ConfigurationError('cannot expand image format "{}" with index {}: {}'.format(template, index, e)) from e

def type_to_str(img):
    depth = _DEPTH_NAMES.get(img.dtype, 'User')
    channels = 1 if img.ndim == 2 else img.shape[2]
    return '{}C{}'.format(depth, channels)

def get_depth(img):
    if img.ndim != 2:
        return None
    if img.dtype == np.uint8:
        return 8
    if img.dtype == np.uint16:
        return 16
    return None

class frame_pair():
    def __init__(self, index, left, right):
        self.index = index
        self.left = left
        self.right = right

    @property
    def width(self):
        return self.left.shape[1]

    @property
    def height(self):
        return self.left.shape[0]

    @property
    def depth(self):
        return get_depth(self.left)

    @property
    def nbytes(self):
        return source_image_bytes(self.width, self.height, self.depth)

class frame_source():
    def __init__(self, left_image_format, right_image_format):
        self.left_image_format = left_image_format
        self.right_image_format = right_image_format

    def get_paths(self, index):
        return format_path(self.left_image_format, index), format_path(self.right_image_format, index)

    @staticmethod
    def check_pair(l, r):
        if (l.shape[:2] != r.shape[:2]) or (l.dtype != r.dtype) or (l.ndim != r.ndim):
            raise IncompatibleImagesError('input images must be same size and type ({} {}x{}, {} {}x{}).'.format(
                type_to_str(l), l.shape[1], l.shape[0], type_to_str(r), r.shape[1], r.shape[0]))
        if get_depth(l) is None:
            message = 'input image format must be 8UC1 or 16UC1, actual format: {}.'.format(type_to_str(l))
            if l.ndim == 3:
                message += ' If you are using color images, please convert them to grayscale first.'
            raise IncompatibleImagesError(message)

    def load(self, index):
        """Read the pair at ``index``.

        Returns None when either side cannot be read, which marks the end of
        the sequence. Raises IncompatibleImagesError for a readable pair that
        cannot be matched.
        """
        fpfn_l, fpfn_r = self.get_paths(index)
        l = cv2.imread(fpfn_l, cv2.IMREAD_UNCHANGED)
        r = cv2.imread(fpfn_r, cv2.IMREAD_UNCHANGED)
        if (l is None) or (r is None):
            logger.debug('could not read frame %d (%s, %s)', index, fpfn_l, fpfn_r)
            return None

        self.check_pair(l, r)
        return frame_pair(index, np.ascontiguousarray(l), np.ascontiguousarray(r))

def load_first_pair(param):
    """Read the pair at start_number, which fixes the engine and buffer geometry."""
    source = frame_source(param.left_image_format, param.right_image_format)
    pair = source.load(param.start_number)
    if pair is None:
        raise FrameLoadError(param.start_number, *source.get_paths(param.start_number))
    return source, pair
