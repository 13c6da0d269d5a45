"""Multi-party contract signing: field model, signature capture, PDF embedding."""
