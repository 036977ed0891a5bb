"""
Tournament engine services.

Pure progression logic:
- Accept a TournamentStore (session wrapper) and plain ids
- Return models or small outcome dataclasses
- Raise services.errors exceptions, never HTTP errors
- Write only through TournamentStore.commit(), once per command
"""
