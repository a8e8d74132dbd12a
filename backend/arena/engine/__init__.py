"""Pure game logic: no database, no wallet, injectable randomness."""
