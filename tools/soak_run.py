"""Soak runner.

Purpose:
- Pour sand headlessly for an extended duration to catch crashes/leaks and
  watch the performance governor react.
- Does not require UI; uses CoreBridge directly.

Usage:
  python3 tools/soak_run.py --seconds 60 --fps 60
  python3 tools/soak_run.py --seconds 30 --shape circle --max-particles 5000

Notes:
- dt fed to the engine is measured wall time (like the Qt canvas), so the
  governor sees real frame rates.
- It prints periodic status and exits non-zero on exceptions.
"""
from __future__ import annotations
import argparse, math, os, sys, time, traceback

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--seconds", type=float, default=60.0)
    ap.add_argument("--fps", type=int, default=60)
    ap.add_argument("--width", type=int, default=800)
    ap.add_argument("--height", type=int, default=600)
    ap.add_argument("--shape", default="none", choices=["none", "circle", "square", "triangle"])
    ap.add_argument("--max-particles", type=int, default=20000)
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--log_every", type=float, default=5.0)
    args = ap.parse_args(argv)

    from qt.core_bridge import CoreBridge
    core = CoreBridge(args.width, args.height, params={
        "shape_type": args.shape,
        "max_particles": args.max_particles,
    }, seed=args.seed)

    frame_s = 1.0 / max(1, int(args.fps))
    t0 = time.perf_counter()
    last = t0
    last_log = t0
    frames = 0
    try:
        while True:
            now = time.perf_counter()
            if now - t0 >= args.seconds:
                break
            # sweep the pointer back and forth across the top third
            phase = (now - t0) * 0.5
            x = args.width * (0.5 + 0.4 * math.sin(phase))
            core.set_pointer(x, args.height * 0.15, True)
            core.tick((now - last) * 1000.0)
            last = now
            frames += 1
            if now - last_log >= args.log_every:
                last_log = now
                st = core.stats()
                gov = st["governor"]
                print(f"[soak] t={now-t0:.1f}s frames={frames} grains={st['particles']} "
                      f"settled={st['settled']} fps={gov['fps']} batch={gov['batch']} interval={gov['interval_ms']}ms")
            spare = frame_s - (time.perf_counter() - now)
            if spare > 0:
                time.sleep(spare)
        print(f"[soak] OK duration={time.perf_counter()-t0:.1f}s frames={frames}")
        return 0
    except Exception as e:
        print("[soak] FAIL:", type(e).__name__, e)
        traceback.print_exc()
        return 2

if __name__ == "__main__":
    raise SystemExit(main())
