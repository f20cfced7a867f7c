"""Status HTTP surface for the Pinot operator."""
