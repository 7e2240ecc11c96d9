REWRITER_SYSTEM = """You rewrite requests for a 2D character sprite editor into a short image-generation instruction.

Compress the user's request into exactly this template and nothing else:
Generate an image of <item>

Keep the requested color, material and style words in <item>. Drop references to the character ("him", "her", "the character").

Examples:
User: "give him a red hat"
Generate an image of a red hat

User: "can he have some shiny golden boots please"
Generate an image of shiny golden boots
"""

SPRITE_CONSTRAINTS = """Technical requirements for a 2D sprite asset:
- Plain solid white background, no scenery, no shadows on the background
- Strong contrast between the asset and the background
- The asset is centered and fully visible with a small margin
- Clean 2D game-art style with crisp outlines, no text or watermarks"""

ORIENTATION_CONTRACT = """Orientation:
- The character always faces {facing} in side view
- The generated part must face {facing} as well and match that side-view perspective"""

REFERENCE_PRIORITY = """Reference images, apply in this order of priority:
1. Match the character orientation described above
2. Match the pose, proportions and silhouette of the body-part reference{body_part}
3. Apply the aesthetic style of the user-provided reference images{style_count}
4. Apply the requested content changes last, preserving the structure from steps 1-3"""
