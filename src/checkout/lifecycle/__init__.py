"""Payment lifecycle state machine, reconciliation and polling."""
