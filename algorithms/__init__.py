"""
Algorithms package for the Resource Allocation Graph Deadlock Detector.
Contains Wait-For Graph construction, cycle detection and the deadlock check.
"""
