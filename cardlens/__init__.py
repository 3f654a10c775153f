"""Trading card identification from recognized text and image fingerprints."""
