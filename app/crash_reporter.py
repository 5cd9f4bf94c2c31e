from __future__ import annotations
import sys, time, traceback
from pathlib import Path
from typing import Optional

ROOT = Path(__file__).resolve().parents[1]


def _now_stamp() -> str:
    return time.strftime("%Y%m%d_%H%M%S", time.localtime())


def write_report(exc_type, exc, tb, *, outdir: Optional[Path] = None) -> Path:
    outdir = Path(outdir) if outdir is not None else ROOT / "out" / "crash_reports"
    outdir.mkdir(parents=True, exist_ok=True)
    p = outdir / f"crash_{_now_stamp()}.txt"

    # diagnostics (best effort: the report must still be written if they fail)
    try:
        from app.diagnostics import as_text as _diag
        diag = _diag()
    except Exception as e:
        diag = f"(diagnostics unavailable: {type(e).__name__}: {e})\n"

    from app.log_buffer import tail
    log_tail = "\n".join(tail(250))

    trace = "".join(traceback.format_exception(exc_type, exc, tb))

    p.write_text(
        "SANDFALL CRASH REPORT\n"
        f"timestamp={_now_stamp()}\n"
        f"argv={sys.argv}\n"
        "\n--- diagnostics ---\n"
        + diag +
        "\n--- recent log ---\n"
        + log_tail +
        "\n--- traceback ---\n"
        + trace,
        encoding="utf-8",
        errors="ignore",
    )
    return p


def install_global(outdir: Optional[Path] = None):
    def _hook(exc_type, exc, tb):
        try:
            rp = write_report(exc_type, exc, tb, outdir=outdir)
            sys.stderr.write(f"\n[Sandfall] Crash report written: {rp}\n")
        except OSError as e:
            sys.stderr.write(f"\n[Sandfall] Could not write crash report: {e}\n")
        # also print default
        sys.__excepthook__(exc_type, exc, tb)
    sys.excepthook = _hook
    return _hook
