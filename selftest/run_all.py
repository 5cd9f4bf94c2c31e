"""Run all selftests.

Usage:
  python -m selftest.run_all
"""

import importlib


TEST_MODULES = [
    'selftest.test_occupancy_grid',
    'selftest.test_obstacles',
    'selftest.test_sand_stepper',
    'selftest.test_sand_emitter',
    'selftest.test_perf_governor',
    'selftest.test_params',
    'selftest.test_sand_sim',
    'selftest.test_headless',
    'selftest.test_app_support',
]


def main():
    failures = []
    for modname in TEST_MODULES:
        try:
            m = importlib.import_module(modname)
            # If module provides main(), call it; else do nothing.
            if hasattr(m, "main") and callable(getattr(m, "main")):
                m.main()
        except Exception as e:
            failures.append((modname, e))

    if failures:
        print("\nFAILED:")
        for modname, e in failures:
            print(f"- {modname}: {type(e).__name__}: {e}")
        raise SystemExit(1)

    print("\nOK: all selftests passed")


if __name__ == "__main__":
    main()
