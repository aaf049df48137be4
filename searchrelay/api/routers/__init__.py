"""HTTP routers mounted by :func:`searchrelay.api.app.create_app`."""
