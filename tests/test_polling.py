from __future__ import annotations

import unittest

from ocr.polling import poll_until_complete


class _Timeout(Exception):
    pass


class TestPollUntilComplete(unittest.TestCase):
    def test_returns_first_terminal_value_with_backoff(self) -> None:
        states = iter(["pending", "pending", "done"])
        sleeps: list[float] = []

        out = poll_until_complete(
            lambda: next(states),
            is_pending=lambda s: s == "pending",
            timeout_s=60,
            interval_s=0.5,
            max_interval_s=5.0,
            on_timeout=_Timeout,
            sleep=sleeps.append,
        )

        self.assertEqual(out, "done")
        self.assertEqual(sleeps, [0.5, 1.0])

    def test_fixed_interval_without_cap(self) -> None:
        states = iter(["pending", "pending", "pending", "done"])
        sleeps: list[float] = []
        poll_until_complete(
            lambda: next(states),
            is_pending=lambda s: s == "pending",
            timeout_s=60,
            interval_s=3.0,
            on_timeout=_Timeout,
            sleep=sleeps.append,
        )
        self.assertEqual(sleeps, [3.0, 3.0, 3.0])

    def test_timeout_exhausted_raises_caller_error(self) -> None:
        calls: list[int] = []

        def fetch() -> str:
            calls.append(1)
            return "pending"

        with self.assertRaises(_Timeout):
            poll_until_complete(
                fetch,
                is_pending=lambda s: s == "pending",
                timeout_s=0,
                interval_s=0.5,
                on_timeout=_Timeout,
                sleep=lambda _: None,
            )
        self.assertEqual(len(calls), 1)

    def test_fetch_errors_propagate(self) -> None:
        def fetch() -> str:
            raise KeyError("boom")

        with self.assertRaises(KeyError):
            poll_until_complete(
                fetch,
                is_pending=lambda s: True,
                timeout_s=60,
                interval_s=0.5,
                on_timeout=_Timeout,
                sleep=lambda _: None,
            )


if __name__ == "__main__":
    unittest.main()
