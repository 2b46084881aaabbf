"""Test configuration and fixtures."""

import logfire

# Spans and logs go nowhere during tests
logfire.configure(send_to_logfire=False, console=False)
