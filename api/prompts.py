ROUTE_SYSTEM_PROMPT = (
    "You are an expert in creating educational eco-friendly treasure hunts. "
    "Generate realistic, accessible routes with meaningful environmental challenges."
)

THEME_FOCUS = {
    'urban-nature': 'Focus on parks, green spaces, urban gardens, street trees, and wildlife habitats within the city',
    'sustainable-shopping': 'Include eco-friendly stores, farmers markets, zero-waste shops, organic food stores, and sustainable businesses',
    'pollinator-hunt': 'Target locations with native flowers, community gardens, bee-friendly plants, butterfly habitats, and pollinator conservation areas',
    'zero-waste-picnic': 'Find locations for sustainable picnic preparation including bulk stores, reusable container shops, compost sites, and scenic picnic spots',
}

ROUTE_GENERATION_PROMPT = """
Create an eco-friendly treasure hunt route for the theme "{theme_placeholder}" near {location_placeholder}.

Theme focus: {theme_focus_placeholder}

Requirements:
- Generate 5-7 stops within a {radius_placeholder}km radius
- Each stop should be walkable or bikeable from the previous one
- Include a mix of photo challenges, trivia questions, and tasks
- Make challenges educational and fun
- Award 15-30 points per stop based on difficulty
- Ensure locations are realistic and accessible

For each stop, provide:
- Realistic address and approximate coordinates (slight variations from the center point)
- Clear challenge instructions
- Educational content related to sustainability/ecology
- Appropriate point values

Return the response in this exact JSON format:
{
  "title": "Quest title",
  "description": "Brief description of the hunt",
  "stops": [
    {
      "id": "stop1",
      "title": "Location name",
      "description": "What to do here",
      "location": {"lat": number, "lng": number},
      "address": "Street address",
      "type": "photo|trivia|task",
      "challenge": {
        "photoPrompt": "What to photograph (if type is photo)",
        "question": "Trivia question (if type is trivia)",
        "options": ["A", "B", "C", "D"] (if type is trivia),
        "correctAnswer": "Correct option, copied exactly from options (if type is trivia)",
        "taskDescription": "Task to complete (if type is task)"
      },
      "completed": false,
      "points": number
    }
  ]
}
"""

HINT_SYSTEM_PROMPT = (
    "You are a helpful eco-treasure hunt guide. "
    "Provide encouraging hints that help without spoiling the challenge."
)

HINT_PROMPT = """
Provide a helpful hint for this eco-treasure hunt challenge without giving away the answer:

Challenge: {challenge_placeholder}

Give a friendly, encouraging hint that guides the participant in the right direction.
"""

FALLBACK_HINT = "Keep exploring! Look around for clues related to nature and sustainability."
