"""Console front end for kakeibo."""
