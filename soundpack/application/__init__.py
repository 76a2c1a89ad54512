"""
Application Layer

Request-time gate, response delivery, background dispatch and the services
behind checkout fulfillment and download auditing.
"""
