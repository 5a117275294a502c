"""syspolicy workstation installer (Python-first, user-level).

Core design goals:
- No administrative privileges required
- Idempotent "ensure X is present" steps with ordered fallbacks
- Fail closed when nobody can answer a confirmation prompt
- Converge on a working `syspolicy` launcher command
- Centralized logging
"""

__all__ = []
