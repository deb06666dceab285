import time
import unittest

import numpy as np

from mandelbrot_viewer.colormaps import BLACK, color_for
from mandelbrot_viewer.compute import evaluate
from mandelbrot_viewer.renderer import (
    DEFAULT_MAX_ITER,
    MandelbrotRenderer,
    WorkerPool,
    default_worker_count,
    partition_rows,
    render,
)
from mandelbrot_viewer.viewport import (
    FrameMapping,
    InvalidFrameError,
    InvalidViewportError,
    Viewport,
)


class TestPartitionRows(unittest.TestCase):

    def check_cover(self, height, num_bands):
        bands = partition_rows(height, num_bands)
        rows = [y for start, stop in bands for y in range(start, stop)]
        self.assertEqual(rows, list(range(height)))
        self.assertTrue(all(stop > start for start, stop in bands))
        return bands

    def test_even_split(self):
        self.assertEqual(self.check_cover(10, 3), [(0, 4), (4, 7), (7, 10)])

    def test_more_bands_than_rows(self):
        self.assertEqual(self.check_cover(2, 8), [(0, 1), (1, 2)])

    def test_single_row(self):
        self.assertEqual(self.check_cover(1, 16), [(0, 1)])

    def test_various(self):
        for height in [1, 7, 600, 1081]:
            for num_bands in [1, 2, 5, 32]:
                self.check_cover(height, num_bands)


class TestWorkerPool(unittest.TestCase):

    def test_start_is_idempotent(self):
        pool = WorkerPool(2)
        self.assertFalse(pool.started)
        self.assertIs(pool.start(), pool)
        executor = pool._executor
        pool.start()
        self.assertIs(pool._executor, executor)
        pool.shutdown()
        pool.shutdown()
        self.assertFalse(pool.started)

    def test_default_size(self):
        self.assertEqual(WorkerPool().num_workers, default_worker_count())
        self.assertGreaterEqual(default_worker_count(), 1)

    def test_rejects_zero_workers(self):
        with self.assertRaises(ValueError):
            WorkerPool(0)

    def test_run_all_writes_disjoint_rows(self):
        out = np.zeros((9, 4), dtype=np.int64)

        def mark(view):
            view += 1

        with WorkerPool(3) as pool:
            pool.run_all(mark, [(out[start:stop],) for start, stop in partition_rows(9, 4)])
        self.assertTrue(np.all(out == 1))

    def test_run_all_reraises(self):
        def boom():
            raise RuntimeError("worker failed")

        with WorkerPool(2) as pool:
            with self.assertRaises(RuntimeError):
                pool.run_all(boom, [()])

    def test_run_all_waits_for_every_task_before_raising(self):
        finished = []

        def boom():
            raise RuntimeError("first band failed")

        def slow(name):
            time.sleep(0.2)
            finished.append(name)

        def late_failure():
            time.sleep(0.1)
            raise ValueError("later band failed")

        with WorkerPool(4) as pool:
            with self.assertRaises(RuntimeError):
                pool.run_all(lambda f, *a: f(*a), [(boom,), (slow, "a"), (late_failure,), (slow, "b")])
            self.assertEqual(sorted(finished), ["a", "b"])


class TestRender(unittest.TestCase):

    max_iter = 200

    @classmethod
    def setUpClass(cls):
        cls.pool = WorkerPool(4).start()

    @classmethod
    def tearDownClass(cls):
        cls.pool.shutdown()

    def test_buffer_shape(self):
        buffer = render(40, 30, max_iter=self.max_iter)
        self.assertEqual(buffer.shape, (1200,))
        self.assertEqual(buffer.dtype, np.uint32)
        self.assertLessEqual(int(buffer.max()), 0xFFFFFF)

    def test_one_by_one(self):
        buffer = render(1, 1, max_iter=self.max_iter)
        self.assertEqual(len(buffer), 1)
        # Pixel (0, 0) lands on -0.25 + 0i, inside the main cardioid
        buffer = render(1, 1, 1.5, 1.0, 1.0, max_iter=self.max_iter, pool=self.pool)
        self.assertEqual(len(buffer), 1)
        self.assertEqual(buffer[0], BLACK)

    def test_idempotent(self):
        args = (64, 48, -0.745, 0.11, 20.0)
        first = render(*args, max_iter=self.max_iter)
        second = render(*args, max_iter=self.max_iter)
        np.testing.assert_array_equal(first, second)
        self.assertEqual(first.tobytes(), second.tobytes())

    def test_default_equals_parameterized(self):
        default = render(64, 48, max_iter=self.max_iter)
        params = render(64, 48, -0.75, 0.0, 1.0, max_iter=self.max_iter)
        np.testing.assert_array_equal(default, params)

    def test_pool_matches_prange(self):
        for args in [(64, 48), (64, 48, -0.745, 0.11, 20.0), (33, 17, 0.0, 0.0, 0.5)]:
            plain = render(*args, max_iter=self.max_iter)
            pooled = render(*args, max_iter=self.max_iter, pool=self.pool)
            np.testing.assert_array_equal(plain, pooled)

    def test_pixels_follow_escape_time(self):
        width, height = 50, 40
        viewport = Viewport(-0.6, 0.2, 1.5)
        buffer = render(width, height, viewport.center_x, viewport.center_y,
                        viewport.zoom, max_iter=self.max_iter, pool=self.pool)
        mapping = FrameMapping.for_viewport(width, height, viewport)
        for x, y in [(0, 0), (25, 20), (49, 39), (31, 12), (10, 33)]:
            result = evaluate(complex(*mapping.pixel_to_complex(x, y)), self.max_iter)
            count = result.iterations if result.escaped else self.max_iter
            self.assertEqual(buffer[y * width + x], color_for(count, self.max_iter))

    def test_default_view_end_to_end(self):
        width, height = 800, 600
        buffer = render(width, height, pool=self.pool)
        mapping = FrameMapping.default(width, height)

        x, y = mapping.complex_to_pixel(-0.5, 0.0)
        self.assertEqual(buffer[y * width + x], BLACK)
        # Top-left corner is (-2.5, -1.0), outside the set
        self.assertNotEqual(buffer[0], BLACK)

    def test_far_point_is_coloured(self):
        width, height = 200, 200
        viewport = Viewport(0.0, 0.0, 0.25)
        buffer = render(width, height, 0.0, 0.0, 0.25, max_iter=self.max_iter)
        x, y = FrameMapping.for_viewport(width, height, viewport).complex_to_pixel(2.0, 2.0)
        self.assertNotEqual(buffer[y * width + x], BLACK)

    def test_partial_view_arguments(self):
        with self.assertRaises(TypeError):
            render(10, 10, 0.0)
        with self.assertRaises(TypeError):
            render(10, 10, 0.0, 0.0)

    def test_invalid_arguments(self):
        with self.assertRaises(InvalidFrameError):
            render(0, 10)
        with self.assertRaises(InvalidFrameError):
            render(10, -1, pool=self.pool)
        with self.assertRaises(InvalidFrameError):
            render(10, 10, max_iter=0)
        with self.assertRaises(InvalidViewportError):
            render(10, 10, 0.0, 0.0, 0.0)
        with self.assertRaises(InvalidViewportError):
            render(10, 10, 0.0, 0.0, -2.0)


class TestMandelbrotRenderer(unittest.TestCase):

    def test_defaults(self):
        renderer = MandelbrotRenderer()
        self.assertEqual(renderer.max_iter, DEFAULT_MAX_ITER)
        self.assertIsNone(renderer.pool)
        self.assertEqual(len(renderer.palette), DEFAULT_MAX_ITER + 1)

    def test_render_starts_pool(self):
        pool = WorkerPool(2)
        try:
            renderer = MandelbrotRenderer(100, pool)
            buffer = renderer.render(16, 12, Viewport(-0.5, 0.0, 2.0))
            self.assertTrue(pool.started)
            self.assertEqual(len(buffer), 16 * 12)
        finally:
            pool.shutdown()

    def test_mapping_for(self):
        renderer = MandelbrotRenderer(100)
        self.assertEqual(renderer.mapping_for(80, 60), FrameMapping.default(80, 60))
        v = Viewport(0.1, 0.2, 3.0)
        self.assertEqual(renderer.mapping_for(80, 60, v), FrameMapping.for_viewport(80, 60, v))


if __name__ == '__main__':
    unittest.main()
