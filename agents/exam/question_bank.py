"""Offline question bank used when no model backend is configured.

Multiple choice questions come in three tiers, used in order:

1. Knowledge questions for the key skills listed in ``SKILL_KNOWLEDGE_QUESTIONS``
   plus questions about the role's own skills and responsibilities.
2. Practice templates, each filled with one of the role's skills. These test
   engineering judgement rather than knowledge of the skill itself.
3. The same practice templates filled with the remaining skills.

A role whose skills have no knowledge questions gets a judgement-only exam,
which is good enough for smoke tests; configure the Gemini backend for real
assessments. With a seed the output is fully deterministic.
"""

import logging
import random
import re
from typing import Optional

from evaluation.parser import DEFAULT_SKILLS, contains_term
from evaluation.types import JobRoleProfile

logger = logging.getLogger(__name__)

# (question, correct option, wrong options)
SKILL_CHOICE_TEMPLATES = (
    (
        "You are asked to ship a change that relies heavily on {skill}. Which approach is most appropriate?",
        "Cover the {skill} change with automated tests and have it reviewed before release",
        [
            "Deploy straight to production and watch for user complaints",
            "Skip tests because {skill} code rarely fails",
            "Release it on Friday evening to avoid traffic",
            "Copy a similar change from an old branch without checking it",
        ],
    ),
    (
        "A production incident is traced to a recent {skill} change. What should happen first?",
        "Mitigate the impact by rolling back or disabling the {skill} change, then investigate",
        [
            "Start rewriting the component in a different technology",
            "Wait for the next scheduled release to address it",
            "Delete the logs so the incident does not repeat",
            "Ask users to retry until the error disappears",
        ],
    ),
    (
        "How should you evaluate whether {skill} is the right tool for a new problem?",
        "Compare {skill} against the problem's constraints and alternatives, ideally with a small prototype",
        [
            "Pick it because it is the newest option available",
            "Use it everywhere so the team only learns one tool",
            "Choose whatever has the most stars on GitHub",
            "Avoid evaluation and decide after the project ships",
        ],
    ),
    (
        "A teammate new to {skill} opens a pull request with several mistakes. What is the best response?",
        "Leave specific review comments on the {skill} code and offer to pair on the fixes",
        [
            "Reject it without comment so they learn on their own",
            "Merge it and fix the mistakes quietly later",
            "Rewrite the whole change yourself",
            "Escalate the mistakes to their manager",
        ],
    ),
    (
        "Which practice best keeps {skill} work maintainable over time?",
        "Consistent {skill} conventions, documentation of decisions and regular refactoring",
        [
            "Keeping all knowledge in one senior engineer's head",
            "Avoiding any changes once the code works",
            "Disabling warnings that slow the build",
            "Duplicating code instead of sharing it",
        ],
    ),
)

# Knowledge questions per skill, keyed by lower-cased skill name:
# (question, correct option, wrong options)
SKILL_KNOWLEDGE_QUESTIONS = {
    "python": (
        (
            "What does calling a Python generator function return?",
            "A generator object that produces values lazily",
            [
                "A list of every yielded value",
                "The first yielded value",
                "None until the function finishes",
                "A tuple of the function's local variables",
            ],
        ),
        (
            "Which Python construct guarantees a file is closed even when an exception is raised?",
            "A with statement using the file as a context manager",
            ["A lambda expression", "A global declaration", "A list comprehension", "An assert statement"],
        ),
    ),
    "sql": (
        (
            "Which SQL clause filters rows after aggregation?",
            "HAVING",
            ["WHERE", "ORDER BY", "LIMIT", "DISTINCT"],
        ),
        (
            "What does a LEFT JOIN return for a left-table row with no match on the right?",
            "The left row with NULLs in the right table's columns",
            [
                "Nothing, the row is dropped",
                "An error for the unmatched row",
                "The left row once per right-table row",
                "The first row of the right table",
            ],
        ),
    ),
    "java": (
        (
            "A Java class overrides equals(). Which other method must it override to work in hash-based collections?",
            "hashCode()",
            ["toString()", "finalize()", "clone()", "compareTo()"],
        ),
        (
            "Which Java collection keeps its keys sorted by their natural order?",
            "TreeMap",
            ["HashMap", "ArrayList", "LinkedHashSet", "ArrayDeque"],
        ),
    ),
    "javascript": (
        (
            "What does 0.1 + 0.2 === 0.3 evaluate to in JavaScript?",
            "false",
            ["true", "undefined", "NaN", "It throws a TypeError"],
        ),
        (
            "Which JavaScript keyword declares a block-scoped binding that cannot be reassigned?",
            "const",
            ["var", "let", "static", "final"],
        ),
    ),
    "typescript": (
        (
            "What must happen before you can read properties of a value typed as unknown in TypeScript?",
            "The type must be narrowed with a check or an assertion",
            [
                "Nothing, unknown behaves exactly like any",
                "The value must be converted to a string",
                "The variable must be declared with var",
                "Strict mode must be switched off",
            ],
        ),
        (
            "What does the TypeScript compiler emit for an interface declaration?",
            "Nothing, interfaces are erased at compile time",
            ["A JavaScript class", "A runtime type check", "A JSON schema file", "A Symbol per property"],
        ),
    ),
    "docker": (
        (
            "How does a Docker image differ from a container?",
            "An image is a read-only template and a container is a running instance of it",
            [
                "They are two names for the same thing",
                "An image only exists while it is running",
                "An image is a virtual machine with its own kernel",
                "A container can only be created on the host that built the image",
            ],
        ),
        (
            "Why put rarely changing steps near the top of a Dockerfile?",
            "So later builds can reuse the cached layers",
            [
                "Docker runs instructions in reverse order",
                "It reduces the number of containers started",
                "Multi-stage builds require it",
                "It encrypts the lower layers",
            ],
        ),
    ),
    "kubernetes": (
        (
            "Which Kubernetes object keeps a set number of identical pods running and supports rolling updates?",
            "Deployment",
            ["ConfigMap", "Service", "PersistentVolume", "Namespace"],
        ),
        (
            "What happens when a pod's readiness probe fails in Kubernetes?",
            "The pod stops receiving Service traffic until the probe passes",
            [
                "The node running the pod is deleted",
                "The whole cluster restarts",
                "The deployment is scaled to zero",
                "The last rollout is undone",
            ],
        ),
    ),
    "git": (
        (
            "Which git command undoes an earlier commit by adding a new commit, without rewriting history?",
            "git revert",
            ["git reset --hard", "git rebase", "git stash", "git clean"],
        ),
        (
            "What happens to the commits that git rebase replays?",
            "They are recreated with new hashes on top of the new base",
            [
                "They are deleted permanently",
                "They are squashed into one merge commit",
                "They are pushed to the remote",
                "They are signed with a GPG key",
            ],
        ),
    ),
    "aws": (
        (
            "Which AWS service stores objects addressed by bucket and key?",
            "S3",
            ["EC2", "RDS", "Lambda", "CloudWatch"],
        ),
        (
            "How should an EC2 instance be given access to other AWS services?",
            "Attach an IAM role to the instance",
            [
                "Copy the root account keys onto the instance",
                "Hard-code access keys in the application",
                "Open every port in the security group",
                "Share one IAM user's keys across the team",
            ],
        ),
    ),
    "react": (
        (
            "When does a React useEffect hook with an empty dependency array run?",
            "Once, after the component first mounts",
            ["On every render", "Never", "Before the first render", "Only when the component unmounts"],
        ),
        (
            "Why does React need a key prop on list items?",
            "To identify items between renders so the right ones are updated",
            [
                "To encrypt the item content",
                "To sort items alphabetically",
                "To make items focusable",
                "To register items with the router",
            ],
        ),
    ),
    "postgresql": (
        (
            "Which PostgreSQL command shows the chosen query plan together with actual run times?",
            "EXPLAIN ANALYZE",
            ["VACUUM FULL", "SHOW PLAN", "DESCRIBE", "REINDEX"],
        ),
        (
            "What is the main job of VACUUM in PostgreSQL?",
            "Reclaiming space held by dead row versions so it can be reused",
            [
                "Dropping unused tables",
                "Encrypting the data files",
                "Resetting every sequence",
                "Closing idle client connections",
            ],
        ),
    ),
    "linux": (
        (
            "Which command lists the processes listening on TCP ports?",
            "ss -ltnp",
            ["chmod -R", "df -h", "uname -a", "crontab -l"],
        ),
        (
            "What does chmod 640 grant on a file?",
            "Read and write for the owner, read for the group, nothing for others",
            [
                "Read for everyone",
                "Execute for the owner only",
                "Full access for the group",
                "Write for others only",
            ],
        ),
    ),
    "excel": (
        (
            "Which Excel function looks up a key in the first column of a range and returns a value from another column?",
            "VLOOKUP",
            ["COUNTA", "TRIM", "ROUND", "NOW"],
        ),
        (
            "What do the dollar signs in the Excel reference $A$1 do?",
            "Keep the row and column fixed when the formula is copied",
            [
                "Format the cell as currency",
                "Hide the cell",
                "Mark the cell as an input",
                "Convert the value to text",
            ],
        ),
    ),
    "tableau": (
        (
            "How do dimensions differ from measures in Tableau?",
            "Dimensions are categorical fields that slice the data and measures are numbers that get aggregated",
            [
                "Dimensions are always dates",
                "Measures cannot be placed on a chart",
                "They are two names for the same thing",
                "Dimensions only exist in extracts",
            ],
        ),
        (
            "Which Tableau feature computes values across the rows of a view, such as a running total?",
            "A table calculation",
            ["A data source filter", "An extract refresh", "A story point", "A parameter action"],
        ),
    ),
    "pandas": (
        (
            "Which pandas method joins two DataFrames on a shared key column?",
            "merge",
            ["pivot", "explode", "melt", "sample"],
        ),
        (
            "What does df.groupby('team')['score'].mean() return in pandas?",
            "The mean score of each team",
            [
                "The overall mean score",
                "The team with the highest score",
                "A copy of df sorted by team",
                "The number of teams",
            ],
        ),
    ),
    "redis": (
        (
            "What does setting a TTL on a Redis key do?",
            "The key is removed automatically once the time runs out",
            [
                "The key is locked against writes",
                "The key is copied to every node",
                "The value is compressed",
                "The key is written to disk immediately",
            ],
        ),
        (
            "Which Redis data structure keeps members ordered by a score?",
            "Sorted set",
            ["List", "Hash", "String", "HyperLogLog"],
        ),
    ),
    "terraform": (
        (
            "What does terraform plan do?",
            "Shows the changes Terraform would make to reach the configured state",
            [
                "Applies the changes immediately",
                "Deletes the state file",
                "Downloads every provider version",
                "Formats the configuration files",
            ],
        ),
        (
            "Why keep Terraform state in a shared remote backend with locking?",
            "So the team works from one state and nobody applies concurrently",
            [
                "To speed up provider downloads",
                "To hide resources from the cloud console",
                "Because local state cannot hold outputs",
                "So no configuration files are needed",
            ],
        ),
    ),
    "rest api": (
        (
            "Which HTTP method replaces the resource at a known URL and is idempotent?",
            "PUT",
            ["POST", "PATCH", "CONNECT", "TRACE"],
        ),
        (
            "Which status code should an API return after creating a new resource?",
            "201 Created",
            ["204 No Content", "302 Found", "400 Bad Request", "500 Internal Server Error"],
        ),
    ),
    "fastapi": (
        (
            "How does FastAPI validate a JSON request body?",
            "By declaring a Pydantic model as the type of an endpoint parameter",
            [
                "By parsing it by hand in middleware",
                "Against an XML schema",
                "By requiring a form upload",
                "It does not validate request bodies",
            ],
        ),
        (
            "What does FastAPI's Depends() provide?",
            "Dependency injection for values an endpoint needs, such as a database session",
            [
                "Background task scheduling",
                "Static file serving",
                "Database migrations",
                "Template rendering",
            ],
        ),
    ),
    "django": (
        (
            "What does select_related() do on a Django queryset?",
            "Follows foreign keys with a join in the same SQL query",
            [
                "Runs one extra query per related object",
                "Caches the queryset in Redis",
                "Selects only primary keys",
                "Orders the results by relation name",
            ],
        ),
        (
            "Which Django command writes migration files from model changes?",
            "python manage.py makemigrations",
            [
                "python manage.py migrate",
                "python manage.py collectstatic",
                "python manage.py shell",
                "python manage.py runserver",
            ],
        ),
    ),
}

RESPONSIBILITY_CHOICE_TEMPLATE = (
    "Which of the following is a stated responsibility of the {title} role?"
)

GENERIC_RESPONSIBILITIES = (
    "Negotiating office lease agreements",
    "Approving company-wide travel budgets",
    "Managing the corporate cafeteria menu",
    "Running payroll for all departments",
    "Designing the company logo",
    "Handling building security access badges",
)

SKILL_LISTING_TEMPLATE = "Which of these is listed as a key skill for the {title} position?"

SKILL_OPEN_TEMPLATES = (
    (
        "Describe a project where you used {skill}. What problem did it solve and what would you change in hindsight?",
        "{skill}, problem context, own contribution, trade-offs, measurable result, lessons learned",
    ),
    (
        "What are common pitfalls when working with {skill}, and how do you avoid them?",
        "{skill}, concrete pitfalls, prevention, testing, code review, monitoring",
    ),
    (
        "How would you explain {skill} to a new team member who has never used it?",
        "{skill}, core concepts, simple example, when to use it, when not to use it",
    ),
    (
        "How do you keep your {skill} knowledge current, and how have you applied something recent?",
        "{skill}, learning sources, practice, concrete recent application, sharing with team",
    ),
)

RESPONSIBILITY_OPEN_TEMPLATE = (
    "This role involves: \"{responsibility}\". Walk through how you would approach it in your first month.",
    "{responsibility}, stakeholders, priorities, plan, success criteria, risks",
)

_SENTENCE_SPLIT = re.compile(r"(?:\r?\n|[.;])\s*")


class QuestionBankBackend:
    """Template-driven generation backend that needs no network access."""

    def __init__(self, options_per_question: int = 4):
        self.options_per_question = options_per_question

    async def draft_questions(
        self,
        profile: JobRoleProfile,
        multiple_choice_count: int,
        open_ended_count: int,
        seed: Optional[int] = None,
    ) -> list[dict]:
        rng = random.Random(seed)
        skills = role_skills(profile)
        responsibilities = split_statements(profile.responsibilities)

        choice_pool = self._choice_questions(profile, skills, responsibilities, rng)
        open_pool = self._open_questions(skills, responsibilities)
        rng.shuffle(open_pool)

        chosen = choice_pool[:multiple_choice_count]
        rng.shuffle(chosen)
        drafts = chosen + open_pool[:open_ended_count]
        # Backfill from the other pool when one type runs short
        missing = multiple_choice_count + open_ended_count - len(drafts)
        if missing > 0:
            drafts += choice_pool[multiple_choice_count:][:missing]
            missing = multiple_choice_count + open_ended_count - len(drafts)
            drafts += open_pool[open_ended_count:][:max(missing, 0)]

        logger.debug(
            "Question bank drafted %d of %d questions for %r",
            len(drafts),
            multiple_choice_count + open_ended_count,
            profile.title,
        )
        return drafts

    def _choice_questions(self, profile, skills, responsibilities, rng) -> list[dict]:
        """Multiple choice pool, ordered by tier and shuffled within each tier."""
        role_specific = []
        for skill in skills:
            for text, correct, wrong in SKILL_KNOWLEDGE_QUESTIONS.get(skill.lower(), ()):
                role_specific.append(self._choice(text, correct, wrong, rng))

        # The stems below do not vary per skill, so each yields one question.
        if skills:
            skill = rng.choice(skills)
            outside = [s for s in DEFAULT_SKILLS if s.lower() not in {k.lower() for k in skills}]
            role_specific.append(
                self._choice(SKILL_LISTING_TEMPLATE.format(title=profile.title), skill, outside, rng)
            )

        if responsibilities:
            role_specific.append(
                self._choice(
                    RESPONSIBILITY_CHOICE_TEMPLATE.format(title=profile.title),
                    rng.choice(responsibilities),
                    list(GENERIC_RESPONSIBILITIES),
                    rng,
                )
            )

        # Each practice template appears once before any template repeats
        practice, repeats = [], []
        for text, correct, wrong in SKILL_CHOICE_TEMPLATES:
            for index, skill in enumerate(rng.sample(skills, len(skills))):
                draft = self._choice(
                    text.format(skill=skill),
                    correct.format(skill=skill),
                    [option.format(skill=skill) for option in wrong],
                    rng,
                )
                (repeats if index else practice).append(draft)

        for tier in (role_specific, practice, repeats):
            rng.shuffle(tier)
        return role_specific + practice + repeats

    def _choice(self, text: str, correct: str, wrong: list[str], rng) -> dict:
        options = [correct] + rng.sample(wrong, self.options_per_question - 1)
        rng.shuffle(options)
        return {
            "text": text,
            "type": "multiple_choice",
            "options": options,
            "correct_answer": correct,
        }

    def _open_questions(self, skills, responsibilities) -> list[dict]:
        drafts = []
        for skill in skills:
            for text, key in SKILL_OPEN_TEMPLATES:
                drafts.append(
                    {
                        "text": text.format(skill=skill),
                        "type": "open_ended",
                        "correct_answer": key.format(skill=skill),
                    }
                )
        text, key = RESPONSIBILITY_OPEN_TEMPLATE
        for responsibility in responsibilities:
            drafts.append(
                {
                    "text": text.format(responsibility=responsibility),
                    "type": "open_ended",
                    "correct_answer": key.format(responsibility=responsibility),
                }
            )
        return drafts


def role_skills(profile: JobRoleProfile) -> list[str]:
    """Key skills in declared order, or known skills mentioned in the role text."""
    skills: list[str] = []
    for skill in profile.key_skills:
        skill = skill.strip()
        if skill and skill.lower() not in (s.lower() for s in skills):
            skills.append(skill)
    if skills:
        return skills

    text = " ".join(
        [profile.title, profile.description, profile.responsibilities, profile.requirements]
    )
    return [skill for skill in DEFAULT_SKILLS if contains_term(text, skill)]


def split_statements(text: str) -> list[str]:
    statements = []
    for part in _SENTENCE_SPLIT.split(text or ""):
        part = part.strip(" -*•\t")
        if len(part) >= 12 and part not in statements:
            statements.append(part)
    return statements
