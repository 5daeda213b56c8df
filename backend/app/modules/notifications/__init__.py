"""In-app notifications: new followers, milestones and earned badges."""
