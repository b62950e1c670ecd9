"""Wire codecs for the Actron Que cloud."""
