from qs_bench.runners.process_runner import run_command

__all__ = ["run_command"]
