"""WSGI entry point for gridbase.

Wraps `gridbase.create_app` so both servers and the Flask CLI can load it:

  flask --app app db upgrade
  flask --app app workspace import-csv --table-id 3 --file contacts.csv --as-user ann@example.com
"""

from werkzeug.middleware.proxy_fix import ProxyFix

from gridbase import create_app as _create_app


def create_app():
    app = _create_app()

    # Trust one hop of X-Forwarded-Proto/Host from the TLS-terminating proxy.
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)
    app.config.setdefault("PREFERRED_URL_SCHEME", "https")
    return app


app = create_app()
