"""
MTD — My Todo, synchronized.

One-shot Todos and weekly Tasks that live on every device you own.
A self-hosted server keeps the reference copy; clients merge into it
over an encrypted, password-authenticated channel.

One server serves exactly one user.
"""

import os

__version__ = "0.1.0"
__author__ = "mtd"

MTD_HOME = os.environ.get("MTD_HOME", "~/.mtd")
