"""Console navigation and the edit/save/cancel state machine."""
