"""Threaded acquisition/processing runtime."""
