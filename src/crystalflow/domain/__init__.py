"""Pure domain logic (no file or host-application side effects)."""
