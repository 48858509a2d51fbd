"""Timer Relay.

Server-side relay between a browser time-tracking client and the Notion and
Toggl Track APIs, so credentials never reach the browser.
"""

__version__ = "0.1.0"
