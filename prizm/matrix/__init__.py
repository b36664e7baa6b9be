"""Pixel matrix editing: frames, drawing, effects, history and timeline."""
