# Routers package.
