"""Per-engine connection options that bound how long a store call may wait.

Kept free of Django imports so ``config.settings`` can use it at load time.
"""

from __future__ import annotations

from typing import Any, Dict


def store_timeout_options(engine: str, seconds: float) -> Dict[str, Any]:
    """Return ``DATABASES[...]["OPTIONS"]`` entries enforcing *seconds*.

    - SQLite: busy ``timeout`` while waiting for the write lock, and
      ``BEGIN IMMEDIATE`` so a transaction takes that lock before its first
      read (SQLite has no ``SELECT ... FOR UPDATE``).
    - PostgreSQL: ``lock_timeout`` and ``statement_timeout``.
    - MySQL: ``innodb_lock_wait_timeout`` and ``max_execution_time``.
    """
    millis = int(seconds * 1000)
    if "sqlite3" in engine:
        return {"timeout": seconds, "transaction_mode": "IMMEDIATE"}
    if "postgresql" in engine:
        return {
            "options": f"-c lock_timeout={millis} -c statement_timeout={millis}"
        }
    if "mysql" in engine:
        whole_seconds = max(1, int(seconds))
        return {
            "init_command": (
                f"SET SESSION innodb_lock_wait_timeout={whole_seconds}, "
                f"SESSION max_execution_time={millis}"
            )
        }
    return {}
