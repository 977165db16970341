"""Flask web server for the confectionery catalog site."""
