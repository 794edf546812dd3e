"""Tests for the RateLimiter class."""

import time
import unittest

from hbase_index.rate_limiter import RateLimiter


class TestRateLimiter(unittest.TestCase):
    """Verify that the rate limiter throttles requests correctly."""

    def test_acquire_does_not_block_first_call(self):
        """The first acquire() call should return almost immediately."""
        limiter = RateLimiter(qps=10.0)
        start = time.time()
        limiter.acquire()
        elapsed = time.time() - start
        self.assertLess(elapsed, 0.05)

    def test_acquire_throttles_rapid_calls(self):
        """Rapid acquire() calls at 2 QPS should enforce delays between requests."""
        limiter = RateLimiter(qps=2.0)
        start = time.time()
        limiter.acquire()
        limiter.acquire()
        limiter.acquire()
        elapsed = time.time() - start
        # 3 calls at 2 QPS: 2 intervals of 0.5s, with slack for scheduling variance
        self.assertGreaterEqual(elapsed, 0.4)

    def test_permits_reserve_multiple_slots(self):
        """A batch of 10 permits at 20 QPS should delay the next caller by about 0.5s."""
        limiter = RateLimiter(qps=20.0)
        limiter.acquire(10)
        start = time.time()
        limiter.acquire()
        self.assertGreaterEqual(time.time() - start, 0.4)

    def test_zero_qps_does_not_block(self):
        """QPS of 0 should disable rate limiting entirely."""
        limiter = RateLimiter(qps=0.0)
        start = time.time()
        for _ in range(10):
            limiter.acquire()
        elapsed = time.time() - start
        self.assertLess(elapsed, 0.1)

    def test_zero_permits_is_free(self):
        """Acquiring no permits should neither block nor reserve a slot."""
        limiter = RateLimiter(qps=1.0)
        self.assertEqual(limiter.acquire(0), 0.0)
        start = time.time()
        limiter.acquire()
        self.assertLess(time.time() - start, 0.05)

    def test_set_rate(self):
        """set_rate() should change the reported and enforced rate."""
        limiter = RateLimiter(qps=0.0)
        self.assertEqual(limiter.qps, 0.0)
        limiter.set_rate(4.0)
        self.assertAlmostEqual(limiter.qps, 4.0)
        start = time.time()
        limiter.acquire()
        limiter.acquire()
        self.assertGreaterEqual(time.time() - start, 0.2)


if __name__ == "__main__":
    unittest.main()
