from __future__ import annotations

from ..models.import_outcome import ImportRunResult

"""Summary rendering: the SUMMARY line and the capped duplicate listing."""

__all__ = [
    "format_duplicates",
    "format_elapsed",
    "render_summary_line",
]


def format_duplicates(duplicates: list[str], limit: int = 10) -> list[str]:
    """Return at most ``limit`` names, plus a ``+N more`` line on overflow.

    >>> format_duplicates(["A a", "B b", "C c"], limit=2)
    ['A a', 'B b', '+1 more']
    """
    shown = list(duplicates[:limit])
    hidden = len(duplicates) - len(shown)
    if hidden > 0:
        shown.append(f"+{hidden} more")
    return shown


def format_elapsed(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # avoid scientific notation
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ImportRunResult) -> str:
    """Render the SUMMARY line for a whole run.

    Format:
    SUMMARY files={n} success={s} failed={f} imported={i} duplicates={d}
    errors={e} elapsed_sec={t}

    >>> r = ImportRunResult(success_files=1, failed_files=0, total_imported=3,
    ...                     total_duplicates=1, total_errors=0, elapsed_seconds=2.0)
    >>> render_summary_line(r)
    'SUMMARY files=1 success=1 failed=0 imported=3 duplicates=1 errors=0 elapsed_sec=2'
    """
    total_files = result.success_files + result.failed_files
    return (
        f"SUMMARY files={total_files} "
        f"success={result.success_files} "
        f"failed={result.failed_files} "
        f"imported={result.total_imported} "
        f"duplicates={result.total_duplicates} "
        f"errors={result.total_errors} "
        f"elapsed_sec={format_elapsed(result.elapsed_seconds)}"
    )
