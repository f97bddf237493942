from setuptools import setup, find_packages

setup(
    name='glslwatch',
    version='0.2.1',
    author='nassimberrada',
    author_email='your.email@example.com',
    description='A live GLSL source tree with #include support and on-demand staleness checks.',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    url='https://github.com/yourusername/glslwatch',
    packages=find_packages(exclude=['tests', 'tests.*']),
    include_package_data=True,
    install_requires=[
        'numpy',
        'moderngl',
        'glfw',
    ],
    extras_require={
        'test': [
            'pytest',
        ]
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Topic :: Multimedia :: Graphics :: 3D Rendering',
        'Topic :: Software Development :: Pre-processors',
    ],
    python_requires='>=3.6',
)
