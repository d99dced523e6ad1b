"""Web service for the two-coin EM surface explorer."""
