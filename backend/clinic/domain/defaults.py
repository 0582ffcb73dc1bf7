"""Default controlled vocabularies loaded at process start."""

from clinic.domain.entities import Configuration, Muscle

DEFAULT_DIAGNOSES = (
    "Dystonie cervicale",
    "Spasticité post-AVC",
    "Spasticité cérébrale",
    "Migraine chronique",
    "Hypersialorrhée",
    "Vessie hyperactive",
    "Autre",
)

DEFAULT_REGIONS = ("Cou", "Membre supérieur", "Membre inférieur", "Visage")

DEFAULT_MUSCLES = (
    Muscle(id="1", name="Sterno-cléido-mastoïdien", region="Cou"),
    Muscle(id="2", name="Splénius", region="Cou"),
    Muscle(id="3", name="Trapèze", region="Cou"),
    Muscle(id="4", name="Biceps brachial", region="Membre supérieur"),
    Muscle(id="5", name="Fléchisseurs des doigts", region="Membre supérieur"),
    Muscle(id="6", name="Gastrocnémiens", region="Membre inférieur"),
    Muscle(id="7", name="Ischio-jambiers", region="Membre inférieur"),
    Muscle(id="8", name="Temporal", region="Visage"),
    Muscle(id="9", name="Masséter", region="Visage"),
)

DEFAULT_PRODUCTS = ("Botox", "Dysport")

DEFAULT_GUIDANCE_TYPES = ("Échographique", "Neurostimulation", "Anatomique")

DEFAULT_POST_INJECTION_EVENTS = (
    "Douleur au site d'injection",
    "Hématome",
    "Faiblesse musculaire",
    "Troubles de la déglutition",
    "Sécheresse buccale",
    "Aucun événement",
)


def default_configuration() -> Configuration:
    return Configuration(
        diagnoses=DEFAULT_DIAGNOSES,
        muscles=DEFAULT_MUSCLES,
        regions=DEFAULT_REGIONS,
        products=DEFAULT_PRODUCTS,
        guidance_types=DEFAULT_GUIDANCE_TYPES,
        post_injection_events=DEFAULT_POST_INJECTION_EVENTS,
        version=1,
    )
