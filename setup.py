from setuptools import setup, find_packages

setup(
    name="url-sentry",
    version="0.1.0",
    description="Strip tracking parameters from URLs copied to the clipboard",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "url_sentry": ["trackingParams.json"],
    },
    python_requires=">=3.8",
    install_requires=[
        "pyperclip",
        "pyobjc-framework-Cocoa; sys_platform == 'darwin'",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "url-sentry=url_sentry.monitor:main",
        ],
    },
)
