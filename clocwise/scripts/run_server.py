"""
Script de serveur de développement.

Lance l'API avec uvicorn. Sans `DATABASE_URL`, l'application démarre sur le stockage mémoire seul;
avec une URL injoignable, elle démarre quand même et bascule sur le stockage de secours.
"""

import os

import uvicorn

from clocwise.app.main import app
from clocwise.core.container import container


def main():
    """
    Point d'entrée principal du serveur.

    L'hôte et le port viennent des paramètres (`APP_HOST`, `APP_PORT`); `PORT` prime sur le port.
    """
    settings = container.settings
    port = int(os.environ.get("PORT", settings.APP_PORT))
    uvicorn.run(app, host=settings.APP_HOST, port=port, reload=False)


if __name__ == "__main__":
    main()
