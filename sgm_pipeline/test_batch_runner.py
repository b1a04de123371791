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

import os
import tempfile
from unittest import TestCase
from unittest import mock

import numpy as np
import cv2
import pytest

from sgm_pipeline.errors import ConfigurationError
from sgm_pipeline.errors import FrameLoadError
from sgm_pipeline.errors import IncompatibleImagesError
from sgm_pipeline.pipeline_params import pipeline_params
from sgm_pipeline.batch_runner import run_batch
from sgm_pipeline.batch_runner import compute_fps
from sgm_pipeline import batch_runner
from sgm_pipeline.testing import write_pair
from sgm_pipeline.testing import host_allocator
from sgm_pipeline.testing import matcher_recorder
from sgm_pipeline.testing import step_timer

class BatchRunnerTestCase(TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dn = self.tmp.name
        self.output_path = os.path.join(self.dn, 'out')
        self.param = pipeline_params()
        self.param.left_image_format = os.path.join(self.dn, 'left_%04d.png')
        self.param.right_image_format = os.path.join(self.dn, 'right_%04d.png')
        self.param.output_path = self.output_path
        self.param.disp_size = 64
        self.allocator = host_allocator()
        self.matcher_factory = matcher_recorder()
        self.rng = np.random.default_rng(2)

    def tearDown(self):
        self.tmp.cleanup()

    def write_frames(self, indices, shape=(24, 32), dtype=np.uint8):
        for k in indices:
            l = self.rng.integers(0, 100, size=shape).astype(dtype)
            r = self.rng.integers(0, 100, size=shape).astype(dtype)
            write_pair(self.dn, k, l, r)

    def run_batch(self):
        return run_batch(self.param, matcher_factory=self.matcher_factory, allocator=self.allocator)

    def output_files(self):
        return sorted(os.listdir(self.output_path))

    def test_stops_at_missing_frame(self):
        self.write_frames(range(3))
        self.param.start_number = 0
        self.param.total_number = 5
        result = self.run_batch()
        assert result.processed == [0, 1, 2]
        assert result.end_of_sequence
        assert self.output_files() == ['disparity_0000.png', 'disparity_0001.png', 'disparity_0002.png']

    def test_stops_at_total_number(self):
        self.write_frames(range(2, 8))
        self.param.start_number = 2
        self.param.total_number = 3
        result = self.run_batch()
        assert result.processed == [2, 3, 4]
        assert not result.end_of_sequence
        assert len(self.output_files()) == 3

    def test_zero_total_number(self):
        self.write_frames(range(2))
        result = self.run_batch()
        assert result.processed == []
        assert self.output_files() == []

    def test_resources_created_once(self):
        self.write_frames(range(4), shape=(24, 32), dtype=np.uint16)
        self.param.total_number = 4
        self.run_batch()
        assert len(self.matcher_factory.matchers) == 1
        matcher = self.matcher_factory.matchers[0]
        assert matcher.execute_count == 4
        assert (matcher.param.width, matcher.param.height) == (32, 24)
        assert (matcher.param.src_depth, matcher.param.dst_depth) == (16, 16)
        assert matcher.param.disp_size == 64

        assert [b.nbytes for b in self.allocator.buffers] == [2 * 24 * 32, 2 * 24 * 32, 2 * 24 * 32]
        d_left, d_right, d_disparity = self.allocator.buffers
        assert d_left.upload_count == 4
        assert d_right.upload_count == 4
        assert d_disparity.download_count == 4
        assert all(b.is_freed for b in self.allocator.buffers)

    def test_encoded_output(self):
        l = self.rng.integers(0, 256, size=(24, 32)).astype(np.uint8)
        r = self.rng.integers(0, 256, size=(24, 32)).astype(np.uint8)
        write_pair(self.dn, 0, l, r)
        self.param.total_number = 1
        self.run_batch()

        d = np.abs(l.astype(np.int32) - r.astype(np.int32))
        expected = np.where(d >= self.param.disp_size, 0, d * 100).astype(np.uint16)
        img = cv2.imread(os.path.join(self.output_path, 'disparity_0000.png'), cv2.IMREAD_UNCHANGED)
        assert img.dtype == np.uint16
        assert np.array_equal(img, expected)

    def test_identical_images(self):
        l = self.rng.integers(0, 256, size=(480, 640)).astype(np.uint8)
        write_pair(self.dn, 0, l, l)
        self.param.total_number = 1
        result = self.run_batch()
        img = cv2.imread(result.written[0], cv2.IMREAD_UNCHANGED)
        assert img.shape == (480, 640)
        assert not np.any(img)

    def test_write_failure_does_not_stop(self):
        self.write_frames(range(3))
        self.param.total_number = 3
        write_disparity = batch_runner.write_disparity
        def failing_write(fpfn, encoded):
            if fpfn.endswith('disparity_0001.png'):
                return False
            return write_disparity(fpfn, encoded)
        with mock.patch.object(batch_runner, 'write_disparity', side_effect=failing_write):
            result = self.run_batch()
        assert result.processed == [0, 1, 2]
        assert result.failed == [1]
        assert self.output_files() == ['disparity_0000.png', 'disparity_0002.png']

    def test_invalid_disp_size_before_allocation(self):
        self.write_frames(range(1))
        self.param.total_number = 1
        self.param.disp_size = 100
        with pytest.raises(ConfigurationError):
            self.run_batch()
        assert self.allocator.buffers == []
        assert self.matcher_factory.matchers == []

    def test_missing_first_frame(self):
        self.write_frames(range(1, 3))
        self.param.total_number = 3
        with pytest.raises(FrameLoadError):
            self.run_batch()
        assert self.allocator.buffers == []

    def test_incompatible_first_frame(self):
        write_pair(self.dn, 0, np.zeros((8, 8), dtype=np.uint8), np.zeros((8, 16), dtype=np.uint8))
        self.param.total_number = 1
        with pytest.raises(IncompatibleImagesError):
            self.run_batch()
        assert self.allocator.buffers == []

    def test_geometry_change_mid_batch(self):
        self.write_frames(range(2), shape=(24, 32))
        self.write_frames(range(2, 3), shape=(24, 16))
        self.param.total_number = 3
        with pytest.raises(IncompatibleImagesError):
            self.run_batch()
        assert all(b.is_freed for b in self.allocator.buffers)
        assert len(self.output_files()) == 2

    def test_progress_line(self):
        self.write_frames(range(1))
        self.param.total_number = 1
        timer = step_timer([0.25])
        with mock.patch('builtins.print') as p:
            run_batch(self.param, matcher_factory=self.matcher_factory, allocator=self.allocator, timer=timer)
        fpfn = os.path.join(self.output_path, 'disparity_0000.png')
        p.assert_any_call('Frame    0: Saved to {} (4.00 FPS)'.format(fpfn))

    def test_compute_fps(self):
        assert compute_fps(1000) == 1000.0
        assert compute_fps(4000) == 250.0
        assert compute_fps(0) == float('inf')

    def test_empty_output_path(self):
        self.write_frames(range(1))
        self.param.total_number = 1
        self.param.output_path = ''
        cwd = os.getcwd()
        os.chdir(self.dn)
        try:
            with mock.patch.object(batch_runner.logger, 'error') as error:
                result = self.run_batch()
        finally:
            os.chdir(cwd)
        assert not error.called
        assert result.written == ['disparity_0000.png']
        assert os.path.exists(os.path.join(self.dn, 'disparity_0000.png'))
