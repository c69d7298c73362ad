"""Allow running pmvault with python -m pmvault."""

from pmvault.main import main

main()
