"""contextcache CLI entry point:
    python -m contextcache rules list <agent_id>
"""

from contextcache.cli import cli

if __name__ == "__main__":
    cli()
