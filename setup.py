from setuptools import setup, find_packages

# Setup configuration
setup(
    name="prizmlink_studio",
    version="0.1.0",
    description="PrizmLink Matrix Studio - LED matrix animation editor and device link",
    author="PrizmLink Team",
    packages=find_packages(include=['prizm', 'prizm.*']),
    py_modules=['app'],
    include_package_data=True,
    install_requires=[
        'flask',
        'flask-cors',
        'requests',
        'websockets>=10.0',
        'prettytable',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    python_requires='>=3.9',
)
