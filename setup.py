"""Install the route_planner package and the FastAPI server dependencies."""
from setuptools import find_packages, setup

setup(
    name="route-planner",
    version="0.1.0",
    description="Six-waypoint route planner with travel times and a PDF itinerary",
    packages=find_packages(include=["route_planner", "route_planner.*"]),
    python_requires=">=3.10",
    install_requires=[
        "fastapi",
        "uvicorn",
        "pydantic",
        "python-dotenv",
        "requests",
        "geopy",
        "polyline",
        "fpdf2",
    ],
    extras_require={
        "test": ["pytest", "httpx"],
    },
    entry_points={
        "console_scripts": ["route-planner=route_planner.__main__:main"],
    },
)
