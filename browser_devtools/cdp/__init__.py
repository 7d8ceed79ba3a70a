"""Chrome DevTools Protocol access: connection, targets, DOM, CSS and the cascade."""
