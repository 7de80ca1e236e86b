"""homoblur command line tools."""
