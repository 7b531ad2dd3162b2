"""`python -m billsense` starts the API server."""

from billsense.main import main

main()
