"""Budget Cycle Engine: pay-cycle scheduling, progress tracking, drawdown forecasting and undo/redo."""
