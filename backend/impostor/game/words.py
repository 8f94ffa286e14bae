from __future__ import annotations

import random

from .models import RANDOM_CATEGORY


DICTIONARIES: dict[str, list[str]] = {
    "venezolano": [
        "Hallaca", "Sifrino", "Patacón", "Cachapa", "Tequeños", "CLAP",
        "Enchufado", "Pepito", "Saime", "Chicha", "Malta", "Frescolita",
        "Encava", "Polar", "Toddy",
    ],
    "animales": [
        "Panda", "Jirafa", "Elefante", "León", "Tigre", "Delfín",
        "Tiburón", "Canguro", "Koala", "Pingüino", "Águila", "Lobo",
    ],
    "cultura_pop": [
        "Star Wars", "Harry Potter", "Marvel", "DC", "Stranger Things",
        "Game of Thrones", "Netflix", "Disney+",
    ],
    "fiestas": [
        "Navidad", "Año Nuevo", "Reyes Magos", "San Valentín", "Halloween",
        "Carnavales", "Cumpleaños", "Quinceaños", "Boda", "Graduación", "Baby Shower",
    ],
    "objetos": [
        "iPhone", "AirPods", "PlayStation", "Xbox", "Nintendo Switch", "Laptop",
        "Audífonos Bluetooth", "Smartwatch", "Cámara GoPro", "Tablet", "Kindle",
    ],
    "comida_internacional": [
        "Pizza", "Hamburguesa", "Sushi", "Tacos", "Ramen", "Lasagna",
        "Paella", "Burrito", "Shawarma", "Hot Dog",
    ],
    "ropa": [
        "Jeans", "Hoodie", "Chaqueta de Cuero", "Franela Oversize", "Zapatillas Nike",
        "Zapatos Jordan", "Vestido", "Traje", "Gorra", "Lentes de Sol",
    ],
    # Deliberately close pairs to confuse the impostor.
    "dificil": [
        "Panda", "Koala", "Oso Polar", "Star Wars", "Star Trek",
        "Guardianes de la Galaxia", "Navidad", "Año Nuevo", "Nochebuena",
    ],
}


def categories() -> list[str]:
    return list(DICTIONARIES.keys())


def random_word(category: str = RANDOM_CATEGORY, rng: random.Random | None = None) -> tuple[str, str]:
    """Returns (word, category). Unknown categories fall back to a random one."""
    rng = rng or random
    selected = category
    if category == RANDOM_CATEGORY or category not in DICTIONARIES:
        selected = rng.choice(categories())
    return rng.choice(DICTIONARIES[selected]), selected
