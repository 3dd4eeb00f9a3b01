"""Web dashboard serving run statistics over HTTP and Server-Sent Events."""
