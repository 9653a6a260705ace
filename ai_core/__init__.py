"""
Tutor core: Gemini client, lesson and explanation chains, and the explanation cache.

No web framework code lives here; the routers in ``backend`` call into it.
"""
