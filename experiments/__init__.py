"""
Experiment driver and command-line entry point of the benchmark.

Run with: python -m experiments.run_all_experiments --data_dir data/processed
"""
