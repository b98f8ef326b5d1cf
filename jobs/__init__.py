"""
jobs/ - Command-line jobs.

Modules:
- scenario: Build and run a simulated deployment from a scenario file
- cli: click entrypoint (`sealedarb`)
"""
