"""Pytest configuration.

The application code lives in the top-level `content_cleaner/` package.
Depending on how pytest is invoked (e.g., via the `pytest` console_script) and
the active import mode, the repository root may not be on `sys.path`, which
breaks imports like `from content_cleaner.modules...`.

This file makes test imports robust by explicitly adding the repo root to
`sys.path` during test collection, and provides shared message fixtures.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]

# NOTE: Insert at the front so local imports win over any similarly named
# third-party packages.
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


APPLE_MAIL_BOUNDARY = "Apple-Mail=_F4579245-0FDA-4EAE-9DE9-C77217F707ED"

APPLE_MAIL_MESSAGE = f"""--{APPLE_MAIL_BOUNDARY}
Content-Transfer-Encoding: quoted-printable
Content-Type: text/plain; charset=utf-8

Hola Richard, te paso un resumen de lo que hablamos:

- Hay que hacer un setup de la cuenta para ver que estrategias nos propone el sistema y como opmtizar el presupuesto (lo coordino con Goerge acá mi calendly www.calendly.com/sergio-prado)

- Trataremos de rescatar leads actuales, y revisar que puntos de contacto automatizar del pipeline actual.

- Prospectar en paralelo con un nuevo Pipeline de mejora automatica con Market Fit.

- A mediano plazo buscar la integracion del mercado américano.

- Revisar estrategias de SEO y generacion de contenidos para autoridad.

--{APPLE_MAIL_BOUNDARY}
Content-Transfer-Encoding: quoted-printable
Content-Type: text/html; charset=utf-8

<html><head><meta http-equiv="content-type" content="text/html; charset=utf-8"></head><body style="overflow-wrap: break-word; -webkit-nbsp-mode: space; line-break: after-white-space;">Hola Richard, te paso un resumen de lo que hablamos:<div><br></div><div>- Hay que hacer un setup de la cuenta para ver que estrategias nos propone el sistema y como opmtizar el presupuesto (lo coordino con Goerge acá mi calendly <a href="http://www.calendly.com/sergio-prado">www.calendly.com/sergio-prado</a>)</div><div><br></div><div>- Trataremos de rescatar leads actuales, y revisar que puntos de contacto automatizar del pipeline actual.</div><div><br></div><div>- Prospectar en paralelo con un nuevo Pipeline de mejora automatica con Market Fit.</div><div><br></div><div>- A mediano plazo buscar la integracion del mercado américano.</div><div><br></div><div>- Revisar estrategias de SEO y generacion de contenidos para autoridad.</div></body></html>

--{APPLE_MAIL_BOUNDARY}--"""


@pytest.fixture
def apple_mail_message() -> str:
    """Two-part Apple Mail message (quoted-printable plain text and HTML)."""
    return APPLE_MAIL_MESSAGE
