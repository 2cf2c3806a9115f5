"""HTTP interface for the analyzer"""
