"""Colombian municipality reference table.

Rows are ``(municipality, department)``. Lookups scan in table order and
the first hit wins, so the larger destinations come first.
"""

import re
from functools import lru_cache
from typing import Optional

from .matching import strip_accents

COLOMBIAN_CITIES: tuple[tuple[str, str], ...] = (
    ("Bogotá", "Cundinamarca"),
    ("Medellín", "Antioquia"),
    ("Cali", "Valle del Cauca"),
    ("Barranquilla", "Atlántico"),
    ("Cartagena", "Bolívar"),
    ("Cúcuta", "Norte de Santander"),
    ("Bucaramanga", "Santander"),
    ("Pereira", "Risaralda"),
    ("Santa Marta", "Magdalena"),
    ("Ibagué", "Tolima"),
    ("Villavicencio", "Meta"),
    ("Manizales", "Caldas"),
    ("Pasto", "Nariño"),
    ("Montería", "Córdoba"),
    ("Neiva", "Huila"),
    ("Armenia", "Quindío"),
    ("Valledupar", "Cesar"),
    ("Popayán", "Cauca"),
    ("Sincelejo", "Sucre"),
    ("Tunja", "Boyacá"),
    ("Riohacha", "La Guajira"),
    ("Florencia", "Caquetá"),
    ("Quibdó", "Chocó"),
    ("Yopal", "Casanare"),
    ("Arauca", "Arauca"),
    ("Mocoa", "Putumayo"),
    ("San José del Guaviare", "Guaviare"),
    ("Leticia", "Amazonas"),
    ("Inírida", "Guainía"),
    ("Mitú", "Vaupés"),
    ("Puerto Carreño", "Vichada"),
    ("San Andrés", "San Andrés y Providencia"),
    ("Soacha", "Cundinamarca"),
    ("Bello", "Antioquia"),
    ("Itagüí", "Antioquia"),
    ("Envigado", "Antioquia"),
    ("Rionegro", "Antioquia"),
    ("Apartadó", "Antioquia"),
    ("Turbo", "Antioquia"),
    ("Palmira", "Valle del Cauca"),
    ("Buenaventura", "Valle del Cauca"),
    ("Tuluá", "Valle del Cauca"),
    ("Cartago", "Valle del Cauca"),
    ("Buga", "Valle del Cauca"),
    ("Jamundí", "Valle del Cauca"),
    ("Yumbo", "Valle del Cauca"),
    ("Soledad", "Atlántico"),
    ("Malambo", "Atlántico"),
    ("Magangué", "Bolívar"),
    ("Floridablanca", "Santander"),
    ("Girón", "Santander"),
    ("Piedecuesta", "Santander"),
    ("Barrancabermeja", "Santander"),
    ("Dosquebradas", "Risaralda"),
    ("Chía", "Cundinamarca"),
    ("Zipaquirá", "Cundinamarca"),
    ("Facatativá", "Cundinamarca"),
    ("Fusagasugá", "Cundinamarca"),
    ("Girardot", "Cundinamarca"),
    ("Mosquera", "Cundinamarca"),
    ("Madrid", "Cundinamarca"),
    ("Funza", "Cundinamarca"),
    ("Duitama", "Boyacá"),
    ("Sogamoso", "Boyacá"),
    ("Ipiales", "Nariño"),
    ("Tumaco", "Nariño"),
    ("Lorica", "Córdoba"),
    ("Ocaña", "Norte de Santander"),
    ("Villa del Rosario", "Norte de Santander"),
    ("Aguachica", "Cesar"),
    ("Maicao", "La Guajira"),
    ("Ciénaga", "Magdalena"),
    ("Calarcá", "Quindío"),
    ("Pitalito", "Huila"),
    ("Espinal", "Tolima"),
    ("Granada", "Meta"),
    ("Acacías", "Meta"),
    ("Aguazul", "Casanare"),
)


@lru_cache(maxsize=1)
def _compiled_table() -> tuple[tuple[re.Pattern, str, str], ...]:
    return tuple(
        (re.compile(rf"\b{re.escape(strip_accents(city))}\b"), city, department)
        for city, department in COLOMBIAN_CITIES
    )


def find_city(text: str) -> Optional[tuple[str, str]]:
    """Find the first reference municipality mentioned in ``text``.

    Matching is accent-insensitive and whole-word.

    Returns:
        ``(city, department)`` with the table's spelling, or None.
    """
    normalized = strip_accents(text)
    for pattern, city, department in _compiled_table():
        if pattern.search(normalized):
            return city, department
    return None


def lookup_city(name: str) -> Optional[tuple[str, str]]:
    """Exact (accent-insensitive) lookup of a municipality name."""
    wanted = strip_accents(name.strip())
    for city, department in COLOMBIAN_CITIES:
        if strip_accents(city) == wanted:
            return city, department
    return None
