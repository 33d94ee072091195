"""Foundation layer: errors, configuration and validator normalization."""
