"""
Runtime services for asset pipeline: logging bootstrap and the live-reload server.
"""
