"""Install the project tracker service."""

from setuptools import setup, find_packages

setup(
    name='tracker',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    package_data={'tracker': ['config.py']},
    install_requires=[
        "flask",
        "flask-sqlalchemy",
        "sqlalchemy",
        "werkzeug",
        "wtforms",
        "click",
        "python-dateutil",
        "pytz",
        "pyjwt",
        "redis",
        "fakeredis",
        "python-json-logger>=3.1"
    ],
    extras_require={
        "test": ["pytest"]
    },
    zip_safe=False
)
