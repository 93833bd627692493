"""Utility modules for BranchTabs."""
