"""
Fixed technology keyword lists.

SKILL_LEXICON feeds the normalizer's skill inference (lowercase terms).
EXTRACTION_SKILL_KEYWORDS is the display-case list plugins fall back to
when a listing exposes no skill tags.
"""

SKILL_LEXICON = (
    'javascript',
    'python',
    'java',
    'react',
    'angular',
    'vue',
    'node.js',
    'express',
    'mongodb',
    'mysql',
    'postgresql',
    'sql',
    'nosql',
    'redis',
    'docker',
    'kubernetes',
    'aws',
    'azure',
    'gcp',
    'git',
    'html',
    'css',
    'sass',
    'less',
    'webpack',
    'babel',
    'typescript',
    'php',
    'laravel',
    'symfony',
    'django',
    'flask',
    'spring boot',
    'microservices',
    'rest api',
    'graphql',
    'agile',
    'scrum',
    'devops',
    'ci/cd',
    'jenkins',
    'terraform',
    'ansible',
    'linux',
    'ubuntu',
    'centos',
    'nginx',
    'apache',
)

EXTRACTION_SKILL_KEYWORDS = (
    'JavaScript',
    'Python',
    'Java',
    'React',
    'Angular',
    'Vue',
    'Node.js',
    'TypeScript',
    'AWS',
    'Docker',
    'MongoDB',
    'MySQL',
    'PostgreSQL',
    'SQL',
    'NoSQL',
    'Git',
    'HTML',
    'CSS',
    'Kubernetes',
    'Jenkins',
    'TensorFlow',
    'PyTorch',
    'Scikit-learn',
    'Bootstrap',
    'Spring Boot',
    'Django',
    'Flask',
    'C++',
    'C#',
    '.NET',
    'PHP',
    'Ruby',
    'Go',
    'Rust',
    'Swift',
    'Kotlin',
)


def match_keywords(text: str, keywords) -> list:
    """Return the keywords that occur in text (case-insensitive substring match), in lexicon order."""
    haystack = (text or '').lower()
    return [kw for kw in dict.fromkeys(keywords) if kw.lower() in haystack]
