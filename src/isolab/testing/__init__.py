"""Testing – pytest fixtures and Hypothesis strategies for harness users."""
