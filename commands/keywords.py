"""
Keyword tables for spoken commands (French, with a few English words).

Tables are ordered (category, synonyms) pairs: the first category with a hit
wins, so order is behavior. "off" comes first because transcriptions of
"éteins" often come back as look-alikes ("etang", "etant").
"""

ACTION_KEYWORDS = (
    ("off", (
        "etang", "ethang", "etant", "éteint", "eteindre", "éteins",
        "désactive", "arrête", "éteindre", "désactiver", "arrêter", "off",
    )),
    ("on", ("allume", "active", "démarre", "allumer", "activer", "démarrer", "on")),
    ("set", ("règle", "mets", "ajuste", "configure", "régler", "mettre", "ajuster", "set")),
    ("get", ("donne", "quel", "quelle", "affiche", "montre", "status", "statut", "état")),
)

DEVICE_TYPES = (
    ("light", ("lumière", "lampe", "éclairage", "led", "ampoule")),
    ("radiator", ("radiateur", "chauffage", "climatisation", "thermostat")),
    ("blind", ("store", "volet", "rideau", "persienne")),
    ("fan", ("ventilateur", "ventilo")),
    ("outlet", ("prise",)),
    ("camera", ("caméra", "camera")),
    ("speaker", ("enceinte", "haut-parleur", "musique", "son")),
    ("temperature", ("température", "temperature")),
)

# room name -> extra words that also designate it
ROOM_SYNONYMS = (
    ("salon", ("living",)),
    ("cuisine", ("kitchen",)),
    ("chambre", ("bedroom",)),
    ("salle de bain", ("bathroom", "bain")),
)

# stored device type aliases accepted for a resolved type
DEVICE_TYPE_ALIASES = (
    ("light", ("switch",)),
    ("temperature", ("therm", "heat", "radiator")),
)

PERCENT_TOKENS = ("%", "percent", "pourcent")

# types that default to "on" when a set command carries no number
BINARY_DEVICE_TYPES = ("light", "fan", "outlet")
