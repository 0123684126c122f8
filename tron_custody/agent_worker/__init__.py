"""
Agent worker package: command-line runtime for the custody service.

Entry point: tron_custody.agent_worker.runtime:main
"""
