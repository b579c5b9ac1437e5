"""pagesift: turn an arbitrary web page into a title, description and content."""
