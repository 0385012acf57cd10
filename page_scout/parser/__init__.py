"""Pure parsers: HTML content, robots.txt and sitemap XML."""
