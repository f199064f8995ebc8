from typing import Iterable, Tuple

# ============================================
# LECTURE FEEDBACK SUMMARY
# ============================================


def get_lecture_summary_system_message(language: str = "English") -> str:
    return f"""You are an assistant that summarizes anonymous student feedback posted during a university lecture.

Write a concise summary in {language} for the lecturer covering:
1. The main points and questions students raised
2. What students were most interested in (weigh posts with more likes higher)
3. The overall trend of the feedback

Do not quote individual posts verbatim and do not try to identify students."""


def format_posts(posts: Iterable[Tuple[str, int]]) -> str:
    """Render (content, like_count) pairs as numbered blocks."""
    blocks = []
    for index, (content, like_count) in enumerate(posts, start=1):
        blocks.append(f"[Post {index}] likes: {like_count}\n{content}")
    return "\n\n".join(blocks)


def get_lecture_summary_prompt(
    posts: Iterable[Tuple[str, int]], total_posts: int, total_likes: int
) -> str:
    return f"""Summarize the student feedback below.

Total posts: {total_posts}
Total likes: {total_likes}
The posts are ordered from most to least liked.

{format_posts(posts)}"""
