# Copyright (c) 2025 NASK. All rights reserved.

import glob
import os.path as osp
import sys

from setuptools import setup, find_packages


setup_dir, setup_filename = osp.split(osp.abspath(__file__))
setup_human_readable_ref = osp.join(osp.basename(setup_dir), setup_filename)

def get_version(filename_base):
    path_base = osp.join(setup_dir, filename_base)
    path_glob_pattern = path_base + '*'
    # The non-suffixed path variant should be
    # tried only if another one does not exist.
    matching_paths = sorted(glob.iglob(path_glob_pattern),
                            reverse=True)
    try:
        path = matching_paths[0]
    except IndexError:
        sys.exit('[{}] Cannot determine the transferobj version '
                 '(no files match the pattern {!a}).'
                 .format(setup_human_readable_ref,
                         path_glob_pattern))
    try:
        with open(path, encoding='ascii') as f:
            return f.read().strip()
    except (OSError, UnicodeError) as exc:
        sys.exit('[{}] Cannot determine the transferobj version '
                 '(an error occurred when trying to '
                 'read it from the file {!a} - {}).'
                 .format(setup_human_readable_ref,
                         path,
                         exc))


version = get_version('.transferobj-version')

requirements = []
with open(osp.join(setup_dir, 'requirements'), encoding='ascii') as f:
    for raw_line in f:
        line = raw_line.strip()
        if not line or line.startswith('#'):
            continue
        requirements.append(line)

test_requirements = ['unittest_expander', 'pytest']


setup(
    name="transferobj",
    version=version,

    packages=find_packages(include=['transferobj', 'transferobj.*']),
    install_requires=requirements,
    extras_require={
        'test': test_requirements,
    },
    python_requires='>=3.10',
    include_package_data=True,
    zip_safe=False,

    description='Transfer object (DTO) marshalling: dicts, JSON, entities, '
                'camelCase <-> snake_case keys.',
    classifiers=[
        'Intended Audience :: Developers',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development :: Libraries',
    ],
    keywords='dto transfer object marshalling serialization json',
)
