"""Install waitlist organizer auth package."""

from setuptools import setup, find_packages

setup(
    name='waitlist-auth',
    version='0.1.0',
    packages=find_packages(exclude=['*tests*']),
    install_requires=[
        "flask",
        "flask-sqlalchemy",
        "sqlalchemy",
        "pyjwt",
        "pydantic>=2",
        "pytz",
        "requests",
        "bcrypt",
        "python-json-logger",
    ],
    extras_require={
        'test': ["pytest"],
    },
    zip_safe=False
)
